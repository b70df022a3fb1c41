"""
Test configuration for the scaffoldgen test suite.

Adds the src directory to sys.path so the tests run from a plain checkout
as well as from an installed package.
"""
import os
import sys

test_dir = os.path.dirname(__file__)
src_dir = os.path.join(test_dir, '..', 'src')
if src_dir not in sys.path:
    sys.path.insert(0, src_dir)
