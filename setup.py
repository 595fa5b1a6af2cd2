"""
Setup configuration for the LTI analysis package
"""

from setuptools import setup

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="lti-analysis",
    version="0.1.0",
    description="Riccati/Lyapunov solvers, Gramians, H2/Hinf norms and balancing for LTI systems",
    long_description=long_description,
    long_description_content_type="text/markdown",
    py_modules=[
        "lti_errors",
        "state_space",
        "riccati_lyapunov",
        "structural_matrices",
        "gramians",
        "system_norms",
        "balancing",
    ],
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Mathematics",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.20.0",
        "scipy>=1.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=6.0",
            "pytest-cov",
            "black",
            "flake8",
            "mypy",
        ],
    },
)
