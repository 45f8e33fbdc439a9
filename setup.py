from pathlib import Path

from setuptools import find_namespace_packages, setup


def load_requirements(name: str) -> list[str]:
    req_path = Path(__file__).parent / name
    lines = req_path.read_text(encoding="utf-8").splitlines()
    return [
        line.strip()
        for line in lines
        if line.strip() and not line.strip().startswith("#")
    ]


setup(
    name="memoriza",
    version="0.1.0",
    description="Medical flashcard generator front service and study client",
    packages=find_namespace_packages(include=["memoriza", "memoriza.*"]),
    install_requires=load_requirements("requirements.txt"),
    extras_require={"test": load_requirements("requirements-test.txt")},
    entry_points={
        "console_scripts": [
            "memoriza=memoriza.__main__:main",
            "memoriza-study=memoriza.cli:main",
        ]
    },
)
