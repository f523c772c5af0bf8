from setuptools import find_namespace_packages, setup

setup(
    name="slideloop-backend",
    version="0.1.0",
    package_dir={"": "backend"},
    packages=find_namespace_packages(
        where="backend", include=["shared*", "services*", "models*", "client*"]
    ),
    py_modules=["app", "database"],
    install_requires=[
        "fastapi>=0.110",
        "uvicorn[standard]>=0.27",
        "SQLAlchemy>=2.0",
        "alembic>=1.13",
        "pydantic>=2.5",
        "email-validator>=2.1",
        "python-jose[cryptography]>=3.3",
        "bcrypt>=4.1",
        "python-multipart>=0.0.9",
        "python-dotenv>=1.0",
        "PyYAML>=6.0",
        "aiohttp>=3.9",
        "Pillow>=10.1",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
            "httpx>=0.26",
        ],
    },
    python_requires=">=3.10",
    include_package_data=True,
    description="Backend and client for SlideLoop timed slide presentations",
    author="Andreas Malathouras",
    author_email="steelstridertgm@gmail.com",
)
