from setuptools import setup

setup(
    name="gmixfit",
    packages=['gmixfit', 'gmixfit.tests'],
    version="0.1.0",
    install_requires=[
        'numpy',
        'numba',
        'scipy',
    ],
    extras_require={
        'tests': ['pytest', 'pyyaml'],
    },
)
