from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="knot-exporter",
    version="1.0.0",
    description="Prometheus exporter for Knot DNS control socket statistics",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Knot Exporter Team",
    packages=find_packages(exclude=["*.tests"]),
    install_requires=[
        "click>=8.0.0",
        "prometheus-client>=0.17.0",
        "psutil>=5.8.0",
        "libknot>=3.2.0"
    ],
    extras_require={
        "dev": [
            "pytest>=6.0.0",
            "pytest-cov>=2.0.0",
            "black>=21.0.0",
            "flake8>=3.8.0",
            "mypy>=0.800"
        ]
    },
    entry_points={
        'console_scripts': [
            'knot-exporter=knot_exporter.cli:cli',
        ],
    },
    python_requires=">=3.8",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Internet :: Name Service (DNS)",
        "Topic :: System :: Networking :: Monitoring",
    ],
)
