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

from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, Field

from openmsa.core.config.config_utils import (
    _convert_alphabet_type,
    _convert_msa_format,
    load_yaml,
)
from openmsa.core.data.io.sequence.msafile import MsaFormat
from openmsa.core.data.resources.alphabets import AlphabetType


class MsaFileConfig(BaseModel):
    """Config for opening an alignment file reader.

    An alphabet of None reads alignments in text mode.
    """

    format: Annotated[MsaFormat, BeforeValidator(_convert_msa_format)]
    alphabet: (
        Annotated[AlphabetType | None, BeforeValidator(_convert_alphabet_type)]
    ) = None
    keyhash: bool = True
    initial_capacity: int = Field(default=16, gt=0)

    @classmethod
    def from_yaml(cls, path: Path | str) -> "MsaFileConfig":
        return cls.model_validate(load_yaml(path))
