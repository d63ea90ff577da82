from setuptools import setup, find_packages

setup(
    name="import_manager",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "pyyaml",
        # JavaScript parsing
        "tree-sitter>=0.22",
        "tree-sitter-javascript",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "import-manager=import_manager.cli:main",
        ],
    },
    description="Analyze and edit import, require and dynamic import statements of JavaScript sources.",
)
