#!/usr/bin/env python3
"""Setup script for geoclue-mcp"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_file = Path(__file__).parent / 'README.md'
long_description = readme_file.read_text() if readme_file.exists() else ''

# Read requirements
requirements_file = Path(__file__).parent / 'requirements.txt'
requirements = []
if requirements_file.exists():
    requirements = [
        line.strip()
        for line in requirements_file.read_text().splitlines()
        if line.strip() and not line.startswith('#')
    ]

setup(
    name='geoclue-mcp',
    version='0.5.0',
    description='MCP servers and diagnostics for the GeoClue Prometheus exporter',
    long_description=long_description,
    long_description_content_type='text/markdown',
    license='MIT',
    packages=find_packages(where='src'),
    package_dir={'': 'src'},
    install_requires=requirements,
    extras_require={
        'test': ['pytest>=7.0'],
    },
    python_requires='>=3.10',
    entry_points={
        'console_scripts': [
            'geoclue-mcp=geoclue_mcp.main:main',
            'geoclue-mcp-metrics=geoclue_mcp.main:main_metrics',
            'geoclue-mcp-config=geoclue_mcp.main:main_config',
            'geoclue-mcp-monitoring=geoclue_mcp.main:main_monitoring',
        ],
    },
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: System Administrators',
        'Operating System :: POSIX :: Linux',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: System :: Monitoring',
        'Topic :: System :: Systems Administration',
    ],
    keywords='geoclue prometheus exporter mcp systemd monitoring',
    include_package_data=True,
    zip_safe=False,
)
