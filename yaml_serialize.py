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
yaml_serialize

Save and load inversion inputs and results as YAML.

Objects are written as tagged mappings of their constructor arguments,
e.g. ``!ContinResult {alpha: 0.01, ...}``, so anything deriving from
Serializable must store each constructor argument under the same
attribute name.
'''

import inspect

import numpy as np
import yaml


class Serializable(object):
    '''
    Base class for objects that can be written to and read from YAML.
    '''
    @property
    def _dict(self):
        params = inspect.signature(self.__class__.__init__).parameters
        return dict((name, getattr(self, name)) for name in params
                    if name != 'self' and hasattr(self, name))

    def __repr__(self):
        args = ', '.join('{0}={1!r}'.format(key, val) for key, val
                         in sorted(self._dict.items()))
        return '{0}({1})'.format(self.__class__.__name__, args)


def _all_subclasses(cls):
    for sub in cls.__subclasses__():
        yield sub
        for subsub in _all_subclasses(sub):
            yield subsub


class _Dumper(yaml.SafeDumper):
    pass


class _Loader(yaml.SafeLoader):
    pass


def _represent_ndarray(dumper, data):
    return dumper.represent_sequence('!ndarray', data.tolist())

def _represent_numpy_scalar(dumper, data):
    return dumper.represent_data(data.item())

def _represent_serializable(dumper, data):
    return dumper.represent_mapping('!' + data.__class__.__name__,
                                    sorted(data._dict.items()))

def _represent_tuple(dumper, data):
    return dumper.represent_sequence('tag:yaml.org,2002:seq', list(data))

_Dumper.add_representer(np.ndarray, _represent_ndarray)
_Dumper.add_representer(tuple, _represent_tuple)
_Dumper.add_multi_representer(np.generic, _represent_numpy_scalar)
_Dumper.add_multi_representer(Serializable, _represent_serializable)


def _construct_ndarray(loader, node):
    return np.array(loader.construct_sequence(node, deep = True))

def _construct_serializable(loader, tag_suffix, node):
    for cls in _all_subclasses(Serializable):
        if cls.__name__ == tag_suffix:
            return cls(**loader.construct_mapping(node, deep = True))
    raise yaml.constructor.ConstructorError(
        None, None, 'unknown object type !{0}'.format(tag_suffix),
        node.start_mark)

_Loader.add_constructor('!ndarray', _construct_ndarray)
_Loader.add_multi_constructor('!', _construct_serializable)


def dumps(obj):
    return yaml.dump(obj, Dumper = _Dumper, default_flow_style = False)


def loads(text):
    return yaml.load(text, Loader = _Loader)


def save(outf, obj):
    '''
    Write obj to outf, a filename or an open file.
    '''
    if isinstance(outf, str):
        with open(outf, 'w') as f:
            f.write(dumps(obj))
    else:
        outf.write(dumps(obj))


def load(inf):
    '''
    Read an object from inf, a filename or an open file.
    '''
    if isinstance(inf, str):
        with open(inf) as f:
            return loads(f.read())
    return loads(inf.read())
