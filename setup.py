from setuptools import setup, find_packages

with open("requirements.txt") as f:
    requirements = f.read().splitlines()

setup(
    name="k3s-autoinstall",
    version="1.0.0",
    description="k3s cluster node bootstrapper with optional WireGuard mesh and add-ons",
    author="DevOps Team",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    package_data={"k3s_autoinstall": ["addons/*.yaml"]},
    include_package_data=True,
    install_requires=requirements,
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "k3s-autoinstall=k3s_autoinstall.cli:main",
        ],
    },
    python_requires=">=3.8",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: System Administrators",
        "Topic :: System :: Systems Administration",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
    ],
)
