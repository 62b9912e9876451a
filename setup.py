from setuptools import setup, find_packages

setup(
    name="interview-listener",
    version="0.1.0",
    description="Realtime interview transcription and question classification",
    author="",
    python_requires=">=3.8",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pyaudio>=0.2.11",
        "numpy>=1.21.0",
        "aiohttp>=3.8.0",
        "pypubsub>=4.0.3",
        "pyyaml>=6.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "interview-listener=interview_listener.main:main",
        ],
    },
)
