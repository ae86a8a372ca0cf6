################################################################################
# File Name: __init__.py
# Purpose/Description: Test package initialization
# Author: Michael Cornelison
# Creation Date: 2026-10-19
# Copyright: (c) 2026 OBD-II Session Engine Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-19    | M. Cornelison | Initial implementation
# ================================================================================
################################################################################

"""
Test package for the OBD-II session engine.

Run tests with:
    pytest tests/
    pytest tests/test_lifecycle.py -v
"""
