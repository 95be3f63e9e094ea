from setuptools import setup, find_packages

setup(
    name="courtsched",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    package_data={"courtsched": ["py.typed", "config/*.yaml"]},
    python_requires=">=3.11",
    install_requires=[
        'PyYAML>=6.0',
        'typing_extensions>=4.5.0',
        'tabulate>=0.9.0',
        'icalendar>=5.0.0'
    ],
    extras_require={
        'test': [
            'pytest>=7.0.0'
        ]
    },
    entry_points={
        'console_scripts': [
            'courtsched=courtsched.cli:main'
        ]
    }
)
