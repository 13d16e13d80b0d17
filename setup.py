"""Install the POS accounts service."""

from setuptools import setup, find_packages

setup(
    name='pos-accounts',
    version='0.1.0',
    packages=find_packages(exclude=['*tests*']),
    package_data={'pos_accounts': ['templates/users/*.html']},
    include_package_data=True,
    entry_points={
        'console_scripts': ['pos-accounts=pos_accounts.cli:main'],
    },
    python_requires='>=3.8',
    install_requires=[
        "flask>=2.3",
        "werkzeug>=2.3",
        "wtforms",
        "email-validator",
        "markupsafe",
        "sqlalchemy>=2.0",
        "redis",
        "fakeredis",
        "pyjwt>=2.0",
        "python-dateutil",
        "pytz",
        "retry",
        "bcrypt",
        "python-json-logger",
        "click"
    ],
    extras_require={
        'test': ['pytest', 'hypothesis', 'mimesis'],
    },
    zip_safe=False
)
