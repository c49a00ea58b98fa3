import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Dict, Union

from pulsetree.Pulse.empty_pulse import EmptyPulse
from pulsetree.Pulse.hard_rf_pulse import HardRfPulse
from pulsetree.Pulse.trap_grad_pulse import TrapGradPulse
from pulsetree.Sequence.atomic_sequence import AtomicSequence
from pulsetree.Sequence.concat_sequence import ConcatSequence
from pulsetree.Sequence.module import Module
from pulsetree.Sequence.sequence import Sequence

log_module = logging.getLogger(__name__)

# Element name -> node class
element_classes = {
    'ConcatSequence': ConcatSequence,
    'AtomicSequence': AtomicSequence,
    'TrapGradPulse': TrapGradPulse,
    'HardRfPulse': HardRfPulse,
    'EmptyPulse': EmptyPulse,
}

# Set by prepare() from the children of a sequence node
derived_sequence_attributes = ('Duration',)


def _parse_value(value: str) -> Union[bool, int, float, str]:
    lowered = value.strip().lower()
    if lowered in ('true', 'false'):
        return lowered == 'true'
    for cast in (int, float):
        try:
            return cast(value)
        except ValueError:
            pass
    return value.strip()


def _kwargs(element: ET.Element, cls: type) -> Dict[str, Any]:
    kwargs = {}
    for name, value in element.attrib.items():
        if name not in cls.ATTRIBUTES:
            raise ValueError(f"Unknown attribute '{name}' for {element.tag}. Must be one of {list(cls.ATTRIBUTES)}.")
        if issubclass(cls, Sequence) and name in derived_sequence_attributes:
            raise ValueError(f"Attribute '{name}' of {element.tag} is derived from its children and cannot be set.")
        if name == 'Name':
            kwargs['name'] = value.strip()
        else:
            kwargs[cls.ATTRIBUTES[name]] = _parse_value(value)
    return kwargs


def _build(element: ET.Element) -> Module:
    if element.tag not in element_classes:
        raise ValueError(f'Unknown element <{element.tag}>. Must be one of {list(element_classes)}.')

    cls = element_classes[element.tag]
    kwargs = _kwargs(element, cls)
    if cls is HardRfPulse:
        kwargs.setdefault('flip_angle', 0.0)
    elif cls is EmptyPulse:
        kwargs.setdefault('duration', 0.0)
    elif cls is TrapGradPulse and 'axis' not in kwargs:
        raise ValueError("<TrapGradPulse> needs an 'Axis' attribute ('GX', 'GY' or 'GZ').")

    node = cls(**kwargs)
    for child in element:
        node.add_child(_build(child))
    return node


def read_xml(source: Union[str, Path]) -> Sequence:
    """
    Build a sequence tree from its XML description.

    The elements are named after the node classes; XML attribute names are the declarative attribute names of the
    classes (e.g. `<TrapGradPulse Name="Gx" Axis="GX" FlatTopArea="100" FlatTopTime="2e-3" ADCs="64"/>`). Values use
    the units of the Python API: seconds, Hz/m, Hz/m/s, 1/m and radians. An outer `<Parameters>` element is skipped.

    Parameters
    ----------
    source : str or Path
        Path of an XML file, or the XML document itself.

    Returns
    -------
    seq : Sequence
        Root of the (unprepared) sequence tree.

    Raises
    ------
    ValueError
        If the document contains unknown elements or attributes, sets an attribute derived during `prepare()` (such
        as `Duration` of a sequence), or its root is not a sequence.
    """
    text = str(source)
    if text.lstrip().startswith('<'):
        root = ET.fromstring(text)
    else:
        root = ET.parse(source).getroot()

    if root.tag == 'Parameters':
        if len(root) != 1:
            raise ValueError('<Parameters> must contain exactly one sequence element.')
        root = root[0]

    seq = _build(root)
    if not isinstance(seq, Sequence):
        raise ValueError(f'The root element must be a sequence. Passed: <{root.tag}>')

    log_module.debug('Read sequence %s with %d children', seq.name, len(seq.get_children()))
    return seq
