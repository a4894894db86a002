import os
from setuptools import find_packages, setup

with open(os.path.join(os.path.dirname(__file__), 'README.md')) as readme:
    README = readme.read()
# allow setup.py to be run from any path
os.chdir(os.path.normpath(os.path.join(os.path.abspath(__file__), os.pardir)))
test_dependencies = ['pytest',
                     'coverage'
                     ]
dependencies = ['requests',
                'kubernetes',
                'statsd'
                ]
setup(
    name='kubenstest',
    version='0.1.0',
    packages=find_packages(exclude=['tests', 'tests.*']),
    include_package_data=True,
    description='Namespace scoped kubectl helpers for end to end testing of kubernetes operators',
    long_description=README,
    long_description_content_type='text/markdown',
    classifiers=[
        'Intended Audience :: Developers',
        'Operating System :: OS Independent',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
    ],
    entry_points={
        'console_scripts': [
            'kubenstest-cleanup=kubenstest.scripts.cleanup:main',
        ],
    },
    python_requires='>=3.6',
    extras_require={'test': test_dependencies},
    install_requires=dependencies,
)
