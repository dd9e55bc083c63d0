import setuptools

setuptools.setup(
    name='causalgrasp',
    version='0.1a.1',
    description='Permutation-based causal DAG learning with GRaSP',
    long_description='causalgrasp is a Python package for learning causal DAGs by searching over variable orders.',
    author='Chandler Squires',
    author_email='chandlersquires18@gmail.com',
    packages=setuptools.find_packages(exclude=['tests', 'tests.*']),
    python_requires='>3.5.0',
    zip_safe=False,
    classifiers=[
        'Topic :: Scientific/Engineering',
        'Topic :: Scientific/Engineering :: Mathematics',
        'Topic :: Scientific/Engineering :: Artificial Intelligence',
    ],
    install_requires=[
        'numpy',
        'scipy',
        'networkx',
        'numba',
        'tqdm',
    ],
    extras_require={
        'test': ['pytest'],
    }
)
