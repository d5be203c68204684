from setuptools import setup, find_packages

setup(
    name='cvflow',
    version='1.0.0',
    description='Optical flow, corner and feature detection on numpy images via OpenCV',
    packages=find_packages(exclude=['tests', 'tests.*']),
    python_requires='>=3.8',
    install_requires=[
        'numpy>=1.21',
        'opencv-python>=4.5',
        'matplotlib>=3.4',
        'Pillow>=8.0',
        'scikit-image>=0.19',
    ],
    extras_require={
        'dev': ['pytest>=7.0'],
    },
    entry_points={
        'console_scripts': ['cvflow-demo=cvflow.demo:main'],
    },
    test_suite='tests',
    tests_require=['pytest>=7.0'],
)
