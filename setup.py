"""
Setup configuration for Thai Learning Cards.
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="thai-learning-cards",
    version="0.1.0",
    author="Thai Learning Cards Team",
    description="Thai vocabulary flashcards with audio playback and package export",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
    ],
    python_requires=">=3.8",
    install_requires=[
        "numpy>=1.21.0",
        "soundfile>=0.12.0",
        "sounddevice>=0.4.0",
        "pyttsx3>=2.90",
        "requests>=2.25.0",
        "genanki>=0.13.0",
        "flask>=2.2.0",
        "flask-cors>=3.0.0",
        "apscheduler>=3.9.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "hypothesis>=6.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "thai-cards=thai_learning_cards.main:main",
        ],
    },
)
