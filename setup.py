from setuptools import setup, find_packages

setup(
    name="vpool-core",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        # Data validation and configuration
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        "python-dotenv>=1.0.0",
        "PyYAML>=6.0",
        # Logging
        "coloredlogs>=15.0.0",
        # Monitoring
        "prometheus_client>=0.17.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.24.0",
            "pytest-mock>=3.10.0",
        ],
    },
    author="ModernTensor",
    author_email="info@moderntensor.net",
    description="Validator pool core: category membership, reputation tiers and era rotation tracking",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.10",
)
