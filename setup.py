from __future__ import annotations

from setuptools import setup

from config.version import PROJECT_VERSION, PYTHON_REQUIRES_SPECIFIER

INSTALL_REQUIRES = [
    "beautifulsoup4>=4.12",
    "loguru>=0.7",
    "pydantic>=2.5",
    "python-dateutil>=2.8",
    "python-dotenv>=1.0",
    "requests>=2.31",
    "tomli>=2.0; python_version < '3.11'",
    "tomli-w>=1.0",
]

TEST_REQUIRES = [
    "hypothesis>=6.90",
    "pytest>=7.4",
]

if __name__ == "__main__":
    setup(
        name="newsroom-pipeline",
        version=PROJECT_VERSION,
        python_requires=PYTHON_REQUIRES_SPECIFIER,
        packages=[
            "config",
            "newsroom",
            "src",
            "src.collectors",
            "src.contracts",
            "src.images",
            "src.images.providers",
            "src.lookups",
            "src.pipeline",
            "src.rewrite",
            "src.sanitizer",
            "src.utils",
        ],
        py_modules=["main", "run_pipeline"],
        install_requires=INSTALL_REQUIRES,
        extras_require={"test": TEST_REQUIRES},
        entry_points={
            "console_scripts": [
                "newsroom=main:main",
                "newsroom-config=newsroom.config_manager:main",
            ]
        },
    )
