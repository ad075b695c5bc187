from setuptools import find_packages, setup

setup(
    name='artisan-mqtt-bridge',
    version='0.1.0',
    description='MQTT -> Serial telemetry bridge for Artisan roaster software',
    author='',
    author_email='',
    packages=find_packages(include=['artisanbridge', 'artisanbridge.*']),
    python_requires='>=3.12',
    install_requires=[
        'aiomqtt>=2.0',
        'paho-mqtt>=2.0',
        'tenacity',
        'transitions',
        'msgspec',
        'marshmallow>=3.13',
        'prometheus-client',
        'uvloop',
        'pyserial',
        'pyserial-asyncio-fast',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-asyncio',
        ],
    },
    entry_points={
        'console_scripts': [
            'artisanbridge=artisanbridge.daemon:main',
            'artisanbridge-simulate=artisanbridge.tools.simulator:main',
        ],
    },
    classifiers=[
        'Programming Language :: Python :: 3',
        'Operating System :: POSIX :: Linux',
    ],
)
