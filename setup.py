from setuptools import setup, find_packages

setup(
    name="paste_provenance",
    version="0.1.0",
    author="Yiming Lin",
    author_email="yiminglin@berkeley.edu",
    description="Detects pasted spans in a live document and overlays them with reviewer annotations.",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
    install_requires=[
        "flask",
        "flask-cors",
        "markupsafe",
        "nltk",
        "python-dotenv",
        "werkzeug",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
