[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "picardcheby"
version = "0.1.0"
description = "Adaptive Picard-Chebyshev integration of perturbed Earth orbits with spherical harmonic gravity"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "orbit propagation",
    "astrodynamics",
    "picard iteration",
    "chebyshev polynomials",
    "numerical integration",
    "spherical harmonic gravity",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Physics",
    "Topic :: Scientific/Engineering :: Astronomy",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
picardcheby = "picardcheby.integrator:main"

[tool.setuptools.packages.find]
include = ["picardcheby*"]

[tool.pytest.ini_options]
addopts = "-ra"
