from setuptools import setup, find_packages

setup(
    name='rnaforce',
    version='0.1.0',
    packages=find_packages(exclude=['tests', 'tests.*']),
    python_requires='>=3.8',
    install_requires=[
        'streamlit',
        'matplotlib',
        'numpy',
        'scipy',
        'pandas',
        'biopython',
        'Pillow',
        'requests',
        'flask',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'rnaforce = rnaforce.cli:main',
        ],
    },
    description='Force-directed diagrams of RNA secondary structures from dot-bracket notation.',
    long_description='Parses a sequence and its dot-bracket structure (with pseudoknot support through the ()[]{}<> '
                     'bracket families) into a base-pair graph, lays it out with a force simulation whose '
                     'distances, strengths, repulsion and collision radius are tunable, and draws or exports the '
                     'result from a command line, a JSON API or a Streamlit viewer.',
    long_description_content_type='text/markdown',
)
