# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

# pylint: disable=unused-import
# import with "as" to explicitely allow reexport (mypy)

from .representation import Bounds as Bounds
from .representation import Real as Real
from .representation import Integer as Integer
from .representation import Representation as Representation
from .representation import encode as encode
from .representation import decode as decode
from . import transforms as transforms
