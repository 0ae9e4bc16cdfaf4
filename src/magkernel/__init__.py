# magkernel - brute-force magnetostatic kernels for finite-difference micromagnetics
#
from magkernel.init import *
from magkernel.__version__ import __version__
