"""
setup.py: Setup script for the item icon identification engine
"""

from setuptools import setup, find_packages

setup(
    name="icon-match",
    version="0.1.0",
    description="Perceptual-hash identification of game item icons",
    packages=find_packages(exclude=["src.tests"]),
    python_requires=">=3.10",
    install_requires=[
        "opencv-python>=4.8.0",
        "Pillow>=10.0.0",
        "imagehash>=4.3.1",
        "numpy>=1.24.0",
        "sqlalchemy>=2.0.0",
        "click>=8.1.7",
        "python-dotenv>=1.0.0",
        "tqdm>=4.66.0",
    ],
    extras_require={
        "test": ["pytest>=7.4.0"],
    },
    entry_points={
        'console_scripts': [
            'icon-match=src.cli.main:cli',
        ],
    },
)
