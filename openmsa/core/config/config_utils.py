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

"""
Helper functions for loading yaml files and converting config values.
"""

from pathlib import Path
from typing import Any

import yaml

from openmsa.core.data.io.sequence.msafile import MsaFormat, encode_format
from openmsa.core.data.resources.alphabets import AlphabetType


def load_yaml(path: Path | str) -> dict[str, Any]:
    """Loads a yaml file as a dictionary."""
    if not isinstance(path, Path):
        path = Path(path)
    with path.open() as f:
        yaml_dict = yaml.safe_load(f)
    return yaml_dict


def _convert_msa_format(value: Any) -> Any:
    if isinstance(value, MsaFormat):
        return value
    elif isinstance(value, str):
        msa_format = encode_format(value)
        if msa_format is MsaFormat.UNKNOWN:
            raise ValueError(f"Unknown alignment format {value!r}.")
        return msa_format
    return value


def _convert_alphabet_type(value: Any) -> Any:
    if isinstance(value, AlphabetType) or value is None:
        return value
    elif isinstance(value, str):
        if value.lower() in ["none", "null", "text"]:
            return None
        try:
            return AlphabetType[value.upper()]
        except KeyError:
            raise ValueError(f"Unknown alphabet {value!r}.") from None
    elif isinstance(value, int):
        return AlphabetType(value)
    return value
