from setuptools import setup
import os

PROJECT_ROOT, _ = os.path.split(os.path.abspath(__file__))
REVISION = '0.1.0'
PROJECT_NAME = 'python-jenkins-http'
SHORT_DESCRIPTION = (
  'HTTP client binding for the Jenkins REST API: URL resolution against the api/json endpoints, '
  'crumb handling, preemptive basic authentication and typed errors.'
)

try:
    DESCRIPTION = open(os.path.join(PROJECT_ROOT, 'README.rst')).read()
except IOError:
    DESCRIPTION = SHORT_DESCRIPTION


def read_requirements(name):
    with open(os.path.join(PROJECT_ROOT, name)) as f:
        return [line.strip() for line in f
                if line.strip() and not line.startswith('#')]


setup(
    name=PROJECT_NAME.lower(),
    version=REVISION,
    packages=[
        'jenkinshttp'],
    zip_safe=True,
    include_package_data=False,
    install_requires=read_requirements('requirements.txt'),
    extras_require={
        'test': read_requirements('test-requirements.txt'),
    },
    description=SHORT_DESCRIPTION,
    long_description=DESCRIPTION,
    license='BSD',
    python_requires='>=3.6',
    classifiers=[
        'Topic :: Utilities',
        'Intended Audience :: Developers',
        'Intended Audience :: System Administrators',
        'Environment :: Console',
        'License :: OSI Approved :: BSD License',
        'Operating System :: OS Independent',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
    ],
)
