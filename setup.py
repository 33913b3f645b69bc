from setuptools import setup, find_packages

setup(
    name="medilink-reminders",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "fastapi",
        "uvicorn",
        "sqlalchemy>=2.0",
        "psycopg2-binary",
        "pydantic>=2",
        "pydantic-settings",
        "python-dotenv",
        "celery",
        "firebase-admin>=6.2",
        "google-cloud-firestore>=2.11",
        "prometheus-client",
        "prometheus-fastapi-instrumentator",
        "plyer",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ],
    },
)
