from setuptools import setup, find_packages

setup(
    name='provisionctl',
    version='0.1.0',
    packages=find_packages(),
    include_package_data=True,
    install_requires=[
        'typer>=0.15,<0.20',
        'click>=8.1,<8.3',
        'fastapi',
        'uvicorn',
        'kubernetes',
        'python-dotenv',
        'requests',
        'pyyaml',
        'jsonschema',
        'pydantic>=2',
        'urllib3',
    ],
    extras_require={
        'test': [
            'pytest',
            'httpx',
        ],
    },
    entry_points={
        'console_scripts': [
            'provisionctl=provisionctl.cli:main'
        ]
    },
    author='Your Name',
    description='A CLI that provisions kubernetes clusters through pluggable driver plugins',
    classifiers=[
        'Programming Language :: Python :: 3',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.8',
)
