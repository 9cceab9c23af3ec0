import pathlib

from setuptools import setup, find_packages

version = (pathlib.Path(__file__).parent / 'blockroma' / 'version.txt').read_text().strip()
setup(
    name='blockroma',
    version=version,
    description='Blockroma EVM chain indexer',
    packages=find_packages(
        exclude=('*.tests.*',),
        include=('blockroma', 'blockroma.*',)
    ),
    package_data={'blockroma': ['version.txt']},
    include_package_data=True,
    zip_safe=False,
    platforms='any',
    python_requires='>=3.8',
    install_requires=[
        'aiohttp>=3.8,<3.12',
        'aiopg>=1.3',
        'async-timeout>=4.0',
        'backoff>=2.0',
        'click>=7.0',
        'eth-abi>=4.0',
        'eth-utils>=2.0',
        'hexbytes>=0.3',
        'mode-streaming>=0.3',
        'prometheus-client>=0.12',
        'psycopg2-binary>=2.8',
        'python-json-logger>=2.0',
        'sentry-sdk>=1.5',
        'sqlalchemy>=1.4,<1.5',
    ],
    extras_require={
        'test': [
            'aioresponses>=0.7',
            'pytest>=7.0',
            'pytest-asyncio>=0.21',
            'pytest-mock>=3.6',
        ],
    },
    entry_points={
        'console_scripts': [
            'blockroma = blockroma.cli:cli',
        ]
    }
)
