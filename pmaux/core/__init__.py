# Copyright (C) 2026 The pmaux developers
#
# This file is part of pmaux.
#
# It is subject to the license terms in the LICENSE file found in the top-level
# directory of this distribution.
#
# No part of pmaux including this file, may be copied, modified, propagated,
# or distributed except according to the terms contained in the LICENSE file.

"""Consensus-critical code

Everything under pmaux.core has the property that changes to it may cause
tickets created by one version to be rejected by another. We keep such code
separate as a reminder to ourselves to pay extra attention when making
changes.
"""
