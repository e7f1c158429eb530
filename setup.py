install_requires = [
    'setuptools',
    'WebOb >= 1.7.0rc2', # Response.has_body
    'PasteDeploy >= 1.5.0', # py3 compat
    'plaster',
    'plaster_pastedeploy',
    'pyramid',
    'waitress',
    ]

tests_require = [
    'pytest >= 6.0',
    'webtest >= 2.0',
    ]

from setuptools import setup, find_packages
import codecs
import os.path

def read(rel_path):
    here = os.path.abspath(os.path.dirname(__file__))
    with codecs.open(os.path.join(here, rel_path), 'r') as fp:
        return fp.read()

def get_version(rel_path):
    for line in read(rel_path).splitlines():
        if line.startswith('__version__'):
            delim = '"' if '"' in line else "'"
            return line.split(delim)[1]
    else:
        raise RuntimeError("Unable to find version string.")

from os import path
this_directory = path.abspath(path.dirname(__file__))
with open(path.join(this_directory, 'README.md')) as f:
    long_description = f.read()

setup(name='rendezvous',
      version=get_version("rendezvous/__init__.py"),
      description='Rendezvous, a network barrier server for synchronising scripts across hosts',
      classifiers=[
          "Development Status :: 4 - Beta",
          "Intended Audience :: Developers",
          "Intended Audience :: System Administrators",
          "Topic :: System :: Distributed Computing",
          "Programming Language :: Python",
          "Programming Language :: Python :: 3",
          "License :: OSI Approved :: BSD License",
      ],
      license="BSD",
      packages=find_packages(include=['rendezvous', 'rendezvous.*']),
      package_data={'rendezvous.web': ['*.ini']},
      entry_points={'paste.app_factory': [
                                            'main = rendezvous.web:main',
                                            ],
                    'console_scripts': [   'rendezvous = rendezvous.scripts:main',
                    ]
      },
      include_package_data=True,
      zip_safe=False,
      python_requires='>=3.8',
      install_requires=install_requires,
      tests_require=tests_require,
      extras_require={'tests': tests_require},
      long_description=long_description,
      long_description_content_type='text/markdown'
      )
