# Copyright 2014, Jerome Fung
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.
'''
contin_kernels

Kernels K(t, tau) for the inversion.

"Matrices" and "vectors" refer to 2 and 1-dimensional ndarrays.
'''

import numpy as np
from numpy import pi, exp

from contin_core import InvalidProblemConfig

def multi_exponential(tau, t):
    '''
    tau : relaxation time
    t : sample time

    Superposition of decays, y(t) = \\int exp(-t/tau) s(tau) dtau.
    '''
    return exp(-t / tau)


def multi_lorentzian(tau, t):
    '''
    tau : half width
    t : sample position (e.g. frequency)

    Normalized Lorentzian of half width tau centered at 0.
    '''
    return tau / (pi * (t**2 + tau**2))


class Kernel(object):
    '''
    A named kernel function func(tau, t), broadcasting over ndarrays.
    '''
    def __init__(self, name, func):
        self.name = name
        self.func = func

    def __call__(self, tau, t):
        return self.func(tau, t)

    def matrix(self, grid, t):
        '''
        Return K with K[i, j] = func(grid[j], t[i]).
        '''
        grid = np.asarray(grid, dtype = float)
        t = np.asarray(t, dtype = float)
        return self.func(grid[np.newaxis, :], t[:, np.newaxis])

    def __repr__(self):
        return 'Kernel({0!r})'.format(self.name)


MULTI_EXPONENTIAL = Kernel('exp', multi_exponential)
MULTI_LORENTZIAN = Kernel('lorentz', multi_lorentzian)

KERNELS = {'exp' : MULTI_EXPONENTIAL,
           'lorentz' : MULTI_LORENTZIAN}

_ALIASES = {'multi-exponential' : 'exp',
            'multi-lorentzian' : 'lorentz'}


def register_kernel(name, func):
    kernel = Kernel(name, func)
    KERNELS[name] = kernel
    return kernel


def get_kernel(kernel_type):
    '''
    kernel_type may be a registered name, a Kernel, or a function
    func(tau, t).
    '''
    if isinstance(kernel_type, Kernel):
        return kernel_type
    if callable(kernel_type):
        return Kernel(getattr(kernel_type, '__name__', 'custom'), kernel_type)
    try:
        return KERNELS[_ALIASES.get(kernel_type, kernel_type)]
    except (KeyError, TypeError):
        raise InvalidProblemConfig('Unknown kernel {0!r}'.format(kernel_type))
