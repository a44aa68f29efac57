import os
from setuptools import setup, find_packages

long_description = ""
if os.path.exists("README.md"):
    with open("README.md", "r", encoding="utf-8") as readme:
        long_description = readme.read()

setup(
    name="rail-transform",
    version="0.1.0",
    description="Permission-gated field serialization for Django projects.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Milia Khaled",
    author_email="miliakhaled@gmail.com",
    packages=find_packages(include=["rail_transform", "rail_transform.*"]),
    include_package_data=True,
    install_requires=[
        "Django>=4.2.27",
        "asgiref>=3.7.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-django>=4.5",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Environment :: Web Environment",
        "Framework :: Django",
        "Framework :: Django :: 4.2",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
    python_requires=">=3.9",
)
