"""
Configuration of the tests : the comparisons are done in double precision.
"""

import jax

jax.config.update('jax_enable_x64', True)
