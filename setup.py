from setuptools import setup, find_packages


setup(
    name="pkgen",
    version="2.0.0",
    description="Package set compiler and archive merger for source builds",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    entry_points={
        "console_scripts": [
            "pkgen = pkgen.app:main",
        ]
    },
    python_requires=">=3.9",
    install_requires=[
        "cleo~=2.1",
        "Jinja2~=3.1",
        "PyYAML~=6.0",
        "requests~=2.31",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "types-requests~=2.31.0.2",
            "types-PyYAML~=6.0",
        ]
    },
)
