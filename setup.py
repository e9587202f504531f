# setup.py
from setuptools import find_namespace_packages, setup

setup(
    name="blitzpack",
    version="1.0.0",
    description="Pack a directory into chunked MessagePack snapshots and boot them in a sandboxed runtime",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["blitzpack", "blitzpack.*"]),
    python_requires=">=3.9",
    install_requires=[
        "msgpack>=1.0",
        "requests>=2.28",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "blitzpack=blitzpack.interface.cli.app:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
