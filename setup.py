from setuptools import setup, find_packages

setup(
    name="hello_service",
    version="0.1",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        "hello_service": ["profiles/*.env"],
    },
    python_requires=">=3.8",
    install_requires=[
        'flask',
        'python-dotenv',
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "hello-service=hello_service.main:main",
        ],
    },
)
