# Copyright 2025 AlQuraishi Laboratory
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from setuptools import find_namespace_packages, setup

setup(
    name="openmsa",
    version="0.1.0",
    description="Readers for Stockholm, SELEX and aligned FASTA alignment files",
    author="OpenFold Team",
    license="Apache License, Version 2.0",
    packages=find_namespace_packages(include=["openmsa", "openmsa.*"]),
    python_requires=">=3.10",
    install_requires=[
        "numpy",
        "pandas",
        "pydantic>=2",
        "pyyaml",
    ],
    extras_require={
        "test": ["pytest"],
    },
    classifiers=[
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python :: 3.10",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
    ],
)
