import os

from setuptools import find_packages, setup

with open("README.md", encoding="utf-8") as fh:
    long_description = fh.read()

requirements_path = "requirements.txt"

if os.path.exists(requirements_path):
    with open(requirements_path, encoding="utf-8") as fh:
        requirements = [
            line.strip()
            for line in fh
            if line.strip() and not line.startswith("#") and not line.startswith("-r")
        ]
else:
    requirements = ["rapidfuzz>=3.0.0", "rich>=13.0.0", "PyYAML>=6.0"]

setup(
    name="package-installer",
    version="0.1.0",
    author="package-installer contributors",
    description="Batch package installer with fuzzy suggestions from a local package catalog",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: System :: Installation/Setup",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=7.0.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "pkginstaller=pkginstaller.cli:main",
            "installer-packages=pkginstaller.cli:installer_packages_main",
        ],
    },
    include_package_data=True,
)
