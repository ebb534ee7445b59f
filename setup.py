from setuptools import setup

setup(
    name="algnt",
    version="0.1.0",
    description="Lattices over number fields, locally free class groups and compact presentations",
    packages=["algnt"],
    install_requires=["sagemath-standard"],
    extras_require={"test": ["pytest"]},
)
