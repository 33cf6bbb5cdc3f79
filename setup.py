from setuptools import setup, find_packages

setup(
    name="khll",
    version="0.1.0",
    description="Bounded-memory uniqueness and containment estimation with KMV and HyperLogLog sketches",
    author="adamfilli",
    packages=find_packages(include=["khll", "khll.*"]),
    install_requires=[
        "numpy",
        "pandas",
    ],
    extras_require={
        "test": ["pytest"],
    },
    include_package_data=True,
    python_requires=">=3.11",
)
