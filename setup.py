"""
Установочный скрипт для fanout-pool.
"""

from setuptools import setup, find_packages
from pathlib import Path

this_directory = Path(__file__).parent
readme = this_directory / "README.md"
long_description = readme.read_text(encoding='utf-8') if readme.exists() else ""

setup(
    name="fanout-pool",
    version="1.0.0",
    author="Fanout Pool Team",
    description="Пул воркеров на ограниченных каналах и сервис параллельной проверки здоровья (fan-out/fan-in)",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    classifiers=[
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: System :: Networking :: Monitoring",
    ],
    python_requires=">=3.8",
    install_requires=[
        "flask>=2.2.0",
        "psutil>=5.9.0",
        "pyyaml>=6.0",
        "requests>=2.28.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "black>=22.0.0",
            "flake8>=5.0.0",
            "mypy>=1.0.0",
            "isort>=5.12.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "fanout-pool=fanout_pool.cli:main",
        ],
    },
    keywords="worker pool channel fan-out fan-in health check concurrency",
)
