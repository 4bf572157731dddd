"""Install the securetoken ID token verifier."""

from setuptools import setup, find_packages

setup(
    name='securetoken-verifier',
    version='0.1.0',
    packages=find_packages(exclude=['*test*']),
    python_requires='>=3.8',
    install_requires=[
        "pyjwt[crypto]",
        "cryptography",
        "requests",
        "google-auth",
        "pydantic>=2",
        "python-json-logger",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-mock",
        ],
    },
    zip_safe=False
)
