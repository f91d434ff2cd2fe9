from pathlib import Path
from setuptools import setup

root_dir = Path(__file__).parent
with open(root_dir / "README.md") as f:
    readme = f.read()

extras_require = {
    "dev": ["pytest", "nox", "ruff", "mypy"],
}

setup(
    name="pdfcolorspace",
    setuptools_git_versioning={
        "enabled": True,
    },
    setup_requires=["setuptools-git-versioning<3"],
    packages=["pdfcolorspace"],
    package_data={"pdfcolorspace": ["py.typed"]},
    install_requires=[
        "pdfminer.six >= 20240706",
        "Pillow >= 10.1",
    ],
    extras_require=extras_require,
    description="PDF color space resolution and conversion to sRGB",
    long_description=readme,
    long_description_content_type="text/markdown",
    license="MIT",
    scripts=[
        "tools/dumpcolors.py",
    ],
    keywords=[
        "pdf",
        "color space",
        "icc profile",
        "pdfminer",
    ],
    python_requires=">=3.10",
    classifiers=[
        "Programming Language :: Python",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Programming Language :: Python :: 3 :: Only",
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Topic :: Multimedia :: Graphics",
    ],
)
