"""
Packaging for the Pentair RS-485 bridge core.

Tests live beside the modules as *_test.py and run with `pytest src` once the test extra
is installed: `pip install -e .[test]`
"""

from setuptools import setup

setup(
    name='pentair-bridge',
    version='0.1.0',
    description='Connection lifecycle and handler dispatch for Pentair RS-485 pool equipment bridges.',
    url='',
    author='',
    author_email='',
    license='EPL-2.0',
    package_dir={'': 'src'},
    packages=['pentair', 'pentair.bridge', 'pentair.config', 'pentair.support', 'pentair.transport'],
    python_requires='>=3.6',
    install_requires=[
        'pyserial>=3.4',
        'configobj>=5.0.6',
    ],
    extras_require={
        'test': [
            'pytest',
            'PyHamcrest',
            'timeout-decorator',
        ],
    },
    zip_safe=False,
)
