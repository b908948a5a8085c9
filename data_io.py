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
data_io

Two-column text files, one tab-separated (x, y) pair per line, for
exporting observed data or recovered spectra.
'''

import numpy as np


def save_data(x, y, fname, fmt = '%f'):
    x = np.asarray(x, dtype = float)
    y = np.asarray(y, dtype = float)
    if x.shape != y.shape:
        raise ValueError('x and y must have equal lengths')
    np.savetxt(fname, np.column_stack((x, y)), fmt = fmt, delimiter = '\t')


def load_data(fname):
    '''
    Returns
    -------
    x, y : ndarrays
    '''
    data = np.loadtxt(fname, delimiter = '\t', ndmin = 2)
    return data[:, 0], data[:, 1]
