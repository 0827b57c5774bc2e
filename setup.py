from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="amm-provisioner",
    version="0.1.0",
    author="Your Name",
    description="Concurrent AMM liquidity provisioning across many wallets",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*", "results", "venv"]),
    package_data={"amm_provisioner": ["abis.json"]},
    python_requires=">=3.9",
    install_requires=[
        "web3>=7.0.0",
        "python-dotenv>=1.0.0",
        "mnemonic>=0.20",
        "eth-account>=0.13.0",
        "aiohttp>=3.9",
        "tenacity>=8.2,<9.1",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "amm-provisioner=amm_provisioner.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
