from setuptools import setup, find_packages


setup(
    name="stegno",
    version="0.1",
    packages=find_packages(include=["stegno", "stegno.*"]),
    description="Hide and recover arbitrary data in PNG images as a private ancillary chunk.",
    author="vercingetorx",
    install_requires=[],
    entry_points={
        "console_scripts": [
            "stegno=stegno.cli:main",
        ]
    },
)
