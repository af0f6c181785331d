# Copyright (C) 2026 The python-mmrproof developers
#
# This file is part of python-mmrproof.
#
# It is subject to the license terms in the LICENSE file found in the top-level
# directory of this distribution.
#
# No part of python-mmrproof, including this file, may be copied, modified,
# propagated, or distributed except according to the terms contained in the
# LICENSE file.
