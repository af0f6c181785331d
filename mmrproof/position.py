# Copyright (C) 2026 The python-mmrproof developers
#
# This file is part of python-mmrproof.
#
# It is subject to the license terms in the LICENSE file found in the top-level
# directory of this distribution.
#
# No part of python-mmrproof, including this file, may be copied, modified,
# propagated, or distributed except according to the terms contained in the
# LICENSE file.

"""Position arithmetic over a merkle mountain range

Every node of a merkle mountain range, leaf or inner, is assigned a position in
the order it is created, starting at 1. After accumulating 4 digests:

          7
        /   \\
       3     6
      / \\   / \\
     1   2 4   5

Appending a fifth digest creates position 8, a new mountain of height 0.

A perfect tree of height h occupies 2^(h+1)-1 positions, with its root at the
last of them. As nodes are never moved or rewritten, the shape of the forest is
a pure function of the number of positions allocated so far, and everything in
this module is stateless arithmetic on positions.

Loops here are bounded by the bit length of their argument, which is enough for
each of them to finish.
"""

def count_ones(n):
    """Number of set bits in n"""
    return bin(n).count('1')

def all_ones(n):
    """Return true if n is of the form 2^k-1, k > 0"""
    return n > 0 and not (n & (n + 1))

def height(position):
    """Height of the node at a position

    Leaves have height 0.
    """
    if position < 1:
        raise ValueError('Positions start at 1; got %d' % position)

    # Strip the largest perfect tree on the left until we're left with the
    # root of a perfect tree ourselves.
    for i in range(position.bit_length()):
        if all_ones(position):
            break
        position -= (1 << (position.bit_length() - 1)) - 1

    return position.bit_length() - 1

def sibling_offset(height):
    """Distance between a node of the given height and its sibling

    Equal to the number of positions in a perfect tree of that height.
    """
    return (1 << (height + 1)) - 1

def parent_offset(height):
    """Distance from a left child of the given height to its parent"""
    return 1 << (height + 1)

def is_right_child(position):
    """Return true if the node at position is a right child

    A right child is immediately followed by its parent, which is one level
    higher. A left child is followed by the first leaf of its sibling.
    """
    return height(position + 1) > height(position)

def _decompose(elements_count):
    peaks = []
    position = 0
    remaining = elements_count
    for h in reversed(range(elements_count.bit_length())):
        mountain = (1 << (h + 1)) - 1
        if mountain <= remaining:
            position += mountain
            remaining -= mountain
            peaks.append(position)
    return peaks, remaining

def is_valid_mmr_size(elements_count):
    """Return true if some number of leaves produces elements_count positions"""
    if elements_count < 0:
        return False
    peaks, remaining = _decompose(elements_count)
    return remaining == 0

def find_peaks(elements_count):
    """Positions of the peaks of a MMR with elements_count positions

    Peaks are returned left to right, tallest and oldest first. Raises
    ValueError if elements_count is not a valid MMR size.
    """
    if elements_count < 0:
        raise ValueError('Element count must be non-negative; got %d' % elements_count)

    peaks, remaining = _decompose(elements_count)
    if remaining:
        raise ValueError('%d is not a valid MMR size' % elements_count)
    return peaks

def leaf_count_to_mmr_size(leaves_count):
    """Number of positions allocated after appending leaves_count leaves

    Every leaf takes one position, and every merge one more. After n appends
    n - count_ones(n) merges have happened.
    """
    return 2 * leaves_count - count_ones(leaves_count)

def mmr_size_to_leaf_count(elements_count):
    """Inverse of leaf_count_to_mmr_size()"""
    return sum(1 << height(peak) for peak in find_peaks(elements_count))

def leaf_index_to_position(leaf_index):
    """Position of the leaf_index'th leaf, counting from zero"""
    if leaf_index < 0:
        raise ValueError('Leaf index must be non-negative; got %d' % leaf_index)
    return leaf_count_to_mmr_size(leaf_index) + 1

def position_to_leaf_index(position):
    """Inverse of leaf_index_to_position()

    Raises ValueError if the position is an inner node.
    """
    if height(position) != 0:
        raise ValueError('Position %d is not a leaf' % position)

    # The leaf was appended to a MMR of position-1 elements.
    return mmr_size_to_leaf_count(position - 1)

def path_to_peak(position, elements_count):
    """Path from a position up to the peak of its mountain

    Returns (path, peak) where path is a list of (sibling_position, is_right)
    tuples, one per level climbed, is_right being true when climbing from a
    right child. peak is the position the climb ends at.

    Raises ValueError if elements_count isn't a valid MMR size or position is
    outside of 1 <= position <= elements_count.
    """
    peaks = find_peaks(elements_count)
    if not (1 <= position <= elements_count):
        raise ValueError('Position out of range; 1 <= %d <= %d' % (position, elements_count))

    path = []
    for i in range(elements_count.bit_length()):
        if position in peaks:
            break

        h = height(position)
        if is_right_child(position):
            path.append((position - sibling_offset(h), True))
            position += 1
        else:
            path.append((position + sibling_offset(h), False))
            position += parent_offset(h)

    assert position in peaks
    return path, position
