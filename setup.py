from setuptools import find_packages, setup

setup(
    name="get-aria2",
    version="0.1.0",
    description="Stream the aria2c executable straight out of its GitHub release archive",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.10",
    install_requires=[
        "aiohttp",
        "rich",
    ],
    extras_require={
        "test": [
            "pytest<9.1",
            "pytest-asyncio",
            "pytest-mock",
        ],
    },
)
