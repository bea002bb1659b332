"""Install TASVideos submission core package."""

from setuptools import setup, find_packages

setup(
    name='tasvideos-submission-core',
    version='0.1.0',
    packages=[f'tasvideos.{package}' for package
              in find_packages('tasvideos')] + ['tasvideos'],
    zip_safe=False,
    install_requires=[
        'flask',
        'python-dateutil',
        'sqlalchemy>=2.0',
        'flask-sqlalchemy>=3.0',
        'celery',
        'redis',
        'requests',
        'retry',
        'pytz',
    ],
    extras_require={
        'test': ['pytest'],
    },
    include_package_data=True
)
