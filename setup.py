import setuptools


def _get_version() -> str:
    """
    Returns the version string defined in `src/pulsetree/version.py`.
    """
    namespace = {}
    with open("src/pulsetree/version.py", "r") as fh:
        exec(fh.read(), namespace)
    return namespace["__version__"]


def _get_long_description() -> str:
    """
    Returns long description from `README.md` if possible, else 'MRI sequence trees and trapezoid gradients'.

    Returns
    -------
    str
        Long description of the pulsetree project.
    """
    try:
        with open("README.md", "r") as fh:
            long_description = fh.read()
    except OSError:
        long_description = "MRI sequence trees and trapezoid gradients"
    return long_description


setuptools.setup(
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: GNU Affero General Public License v3",
        "Operating System :: OS Independent",
    ],
    description="MRI pulse sequence trees, trapezoidal gradient solving and sequence diagram export",
    include_package_data=True,
    install_requires=[
        "h5py>=3.1",
        "matplotlib>=3.5.2",
        "numpy>=1.19.5",
        "scipy>=1.8.1",
    ],
    extras_require={
        "test": [
            "coverage>=6.2",
            "pytest",
        ],
    },
    license="License :: OSI Approved :: GNU Affero General Public License v3",
    long_description=_get_long_description(),
    long_description_content_type="text/markdown",
    name="pulsetree",
    package_dir={"": "src"},
    packages=setuptools.find_packages(where="src"),
    python_requires=">=3.8",
    version=_get_version(),
)
