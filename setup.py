from setuptools import find_packages, setup

setup(
    name='axpy_verify',
    version='0.1.0',
    description='Correctness verification harness for accelerated AXPY kernels',
    packages=find_packages(include=['verification', 'verification.*', 'axpy', 'axpy.*']),
    python_requires='>=3.8',
    install_requires=[
        'numpy',
        'torch',
        'tqdm',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'axpy-verify=verification.run_verification:main',
        ],
    },
)
