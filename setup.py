from setuptools import setup, find_packages

setup(
    name="memocare",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "fastapi",
        "uvicorn[standard]",
        "sqlalchemy>=2.0",
        "psycopg2-binary",
        "python-dotenv",
        "pydantic>=2",
        "pydantic-settings",
        "websockets",
        "prometheus-client",
        "prometheus-fastapi-instrumentator",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ],
    },
)
