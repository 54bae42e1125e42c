from setuptools import find_namespace_packages, setup

# Installation en mode développement :
#   pip install -e .[test]

setup(
    name='admin-console',
    version='1.0',
    description="Console d'administration - synchronisation des préférences de navigation",
    author='Sebastien Cangemi',
    author_email='contact@example.com',
    url='https://example.com/admin-console',
    packages=find_namespace_packages(include=['admin_console', 'admin_console.*']),
    python_requires='>=3.10',
    install_requires=[
        'fastapi>=0.110',
        'uvicorn>=0.27',
        'pydantic>=2.5',
        'httpx>=0.27',
        'bcrypt>=4.0',
        'PyJWT>=2.8',
    ],
    extras_require={
        'test': ['pytest>=7.4'],
    },
    classifiers=[
        'Programming Language :: Python :: 3',
        'Framework :: FastAPI',
    ],
)
