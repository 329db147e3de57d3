import pytest


@pytest.fixture
def yaml_file(tmp_path):
    """Write a YAML document to a temporary file and return its path."""
    def write(text: str, name: str = "config.yaml") -> str:
        path = tmp_path / name
        path.write_text(text)
        return str(path)
    return write
