"""Install the userauth service."""

from setuptools import setup, find_packages

setup(
    name='userauth',
    version='0.1.0',
    packages=find_packages(exclude=['*test*']),
    py_modules=['wsgi', 'create_db', 'create_user'],
    install_requires=[
        "flask",
        "click",
        "sqlalchemy>=1.4",
        "redis>=4.0",
        "fakeredis[lua]",
        "bcrypt",
        "wtforms",
        "python-dateutil",
        "pytz",
        "python-json-logger"
    ],
    extras_require={
        'test': [
            "pytest",
            "mimesis",
        ]
    },
    zip_safe=False
)
