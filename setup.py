"""Setup configuration for EEG Spectrogram Service."""

from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""

setup(
    name="eeg-spectrogram",
    version="0.3.0",
    author="EEG Spectrogram Team",
    description="Montage-group EEG spectrograms with change-point detection over WebSocket",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["eegspec", "eegspec.*"]),
    py_modules=["main"],
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.24.0",
        "scipy>=1.10.0",
        "pyEDFlib>=0.1.30",
        "pyyaml>=6.0",
        "python-dotenv>=1.0.0",
        "fastapi>=0.100.0",
        "pydantic>=1.10.0",
        "uvicorn>=0.23.0",
        "prometheus-client>=0.17.0",
        "psutil>=5.9.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "httpx>=0.24.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "eeg-spectrogram=main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Medical Science Apps.",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    keywords="eeg edf spectrogram stft change-point websocket",
)
