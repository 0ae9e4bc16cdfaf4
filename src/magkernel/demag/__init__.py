from .kernel import brute_kernel, unit_kernel, KernelBuilder
from .tensor import DemagKernel
