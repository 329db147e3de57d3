from setuptools import setup, find_packages

setup(
    name='xformpy',
    version='0.1.0',
    packages=find_packages(include=['xformpy', 'xformpy.*']),
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    python_requires='>=3.8',
    install_requires=[
        'numpy',
        'scipy>=1.11',
        'pydantic>=2',
        'omegaconf',
    ],
    extras_require={
        'test': ['pytest'],
    },
)
