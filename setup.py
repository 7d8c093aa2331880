from setuptools import setup, find_packages

setup(
    name="slack-dispatch",
    version="0.1.0",
    packages=find_packages(where="src", include=["slack_dispatch", "slack_dispatch.*"]),
    package_dir={"": "src"},
    install_requires=[
        "fastapi>=0.110",
        "starlette",
        "pydantic>=2",
        "structlog",
        "httpx",
        "python-dotenv",
        "PyYAML",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-httpx",
        ],
    },
    entry_points={
        "console_scripts": [
            "slack-dispatch-deferred=slack_dispatch.core.deferred_cli:main",
        ],
    },
    description="A dispatch engine for Slack webhook requests.",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.10",
)
