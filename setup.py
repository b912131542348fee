from setuptools import setup, find_packages

setup(
    name='swarmplan',
    version='0.1.0',
    packages=find_packages(),
    include_package_data=True,
    install_requires=[
        'typer',
        'ansible-runner',
        'python-dotenv',
        'PyYAML',
        'jsonschema'
    ],
    extras_require={
        'test': ['pytest']
    },
    entry_points={
        'console_scripts': [
            'swarmplan=swarmplan.cli:app'
        ]
    },
    description='Topology planner for Docker Swarm clusters on Hetzner Cloud',
    classifiers=[
        'Programming Language :: Python :: 3',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.9',
)
