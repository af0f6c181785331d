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

import logging

from mmrproof.position import find_peaks, path_to_peak
from mmrproof.serialize import (DIGEST_LENGTH, ZERO_DIGEST, Digest, DigestList,
                                HashTag, Serializer, UInt64)

"""Inclusion proofs

Provides the Proof class, an immutable record of everything needed to show
that a digest sits at a given position of a merkle mountain range, and
verify_proof() to check one against a previously published root.

Verification is a pure function of the leaf value, the proof and the root. It
never needs the mountain range itself, so proofs can be checked by parties that
only ever saw the root.


Bagging the peaks
=================

The root of a MMR commits to its peaks and to its size:

    root = H(elements_count || bag(peaks))

The peaks are bagged right to left, starting with the two newest:

    bag([])              = 0
    bag([p1])            = p1
    bag([p1 ... pk])     = H(p1 || H(p2 || ... H(p(k-1) || pk)))

where elements_count is encoded as a DIGEST_LENGTH byte big-endian integer.
Any verifier must use this exact convention; a different fold order produces a
different root and silently rejects valid proofs.
"""

logger = logging.getLogger(__name__)

DEFAULT_HASHER = HashTag('5b3fd0c6-4ab7-4cd0-a93f-04f2ad2c3e1e')

class MerkleMountainRangeError(Exception):
    """Base class for all merkle mountain range errors"""

class MalformedProofError(MerkleMountainRangeError, ValueError):
    """Proof shape inconsistent with the MMR size it claims"""


def bag_peaks(peaks, hasher=DEFAULT_HASHER):
    """Fold peak hashes, given left to right, into a single digest"""
    if not peaks:
        return ZERO_DIGEST

    bag = peaks[-1]
    for peak in reversed(peaks[:-1]):
        bag = hasher.hash_pair(peak, bag)
    return bag

def calc_root_hash(elements_count, bag, hasher=DEFAULT_HASHER):
    """Commit to the bagged peaks and the number of elements under them"""
    return hasher.hash_pair(elements_count.to_bytes(DIGEST_LENGTH, 'big'), bag)


class Proof(Serializer):
    """Proof that a digest is at a position of a merkle mountain range

    element_index   - position of the element
    element_hash    - the digest at that position
    siblings_hashes - sibling digests from the element up to its peak
    peaks_hashes    - every peak of the MMR, left to right
    elements_count  - size of the MMR the proof was made against

    Proofs are immutable.
    """
    __slots__ = ['element_index', 'element_hash', 'siblings_hashes',
                 'peaks_hashes', 'elements_count']

    def __init__(self, element_index, element_hash, siblings_hashes, peaks_hashes, elements_count):
        object.__setattr__(self, 'element_index', element_index)
        object.__setattr__(self, 'element_hash', element_hash)
        object.__setattr__(self, 'siblings_hashes', tuple(siblings_hashes))
        object.__setattr__(self, 'peaks_hashes', tuple(peaks_hashes))
        object.__setattr__(self, 'elements_count', elements_count)

    def __setattr__(self, name, value):
        raise AttributeError('Proofs are immutable')

    def __delattr__(self, name):
        raise AttributeError('Proofs are immutable')

    def _astuple(self):
        return (self.element_index, self.element_hash, self.siblings_hashes,
                self.peaks_hashes, self.elements_count)

    def __eq__(self, other):
        if other.__class__ is not self.__class__:
            return NotImplemented
        return self._astuple() == other._astuple()

    def __hash__(self):
        return hash(self._astuple())

    def __repr__(self):
        return '%s(element_index=%d, elements_count=%d, %d siblings, %d peaks)' % \
                (self.__class__.__qualname__, self.element_index, self.elements_count,
                 len(self.siblings_hashes), len(self.peaks_hashes))

    @classmethod
    def check_instance(cls, value):
        if value.__class__ is not cls:
            raise TypeError('Expected %s; got %r' % (cls.__qualname__, value.__class__))
        UInt64.check_instance(value.element_index)
        Digest.check_instance(value.element_hash)
        DigestList.check_instance(value.siblings_hashes)
        DigestList.check_instance(value.peaks_hashes)
        UInt64.check_instance(value.elements_count)

    @classmethod
    def ctx_serialize(cls, self, ctx):
        cls.check_instance(self)
        ctx.write_obj(self.element_index, UInt64)
        ctx.write_obj(self.element_hash, Digest)
        ctx.write_obj(self.siblings_hashes, DigestList)
        ctx.write_obj(self.peaks_hashes, DigestList)
        ctx.write_obj(self.elements_count, UInt64)

    @classmethod
    def ctx_deserialize(cls, ctx):
        element_index = ctx.read_obj(UInt64)
        element_hash = ctx.read_obj(Digest)
        siblings_hashes = ctx.read_obj(DigestList)
        peaks_hashes = ctx.read_obj(DigestList)
        elements_count = ctx.read_obj(UInt64)
        return cls(element_index, element_hash, siblings_hashes, peaks_hashes, elements_count)


def verify_proof(leaf_value, proof, expected_root, hasher=DEFAULT_HASHER):
    """Verify that leaf_value is in the MMR committed to by expected_root

    Returns False if the digests don't add up to expected_root. Raises
    MalformedProofError if the proof's shape is impossible for the MMR size
    it claims; no digests are hashed in that case.

    The direction of every step is derived from proof.element_index, never
    from the proof's contents.
    """
    try:
        path, peak = path_to_peak(proof.element_index, proof.elements_count)
    except ValueError as err:
        raise MalformedProofError(str(err)) from err

    peak_positions = find_peaks(proof.elements_count)

    if len(proof.siblings_hashes) != len(path):
        raise MalformedProofError('Expected %d siblings for position %d of %d; got %d' % \
                (len(path), proof.element_index, proof.elements_count, len(proof.siblings_hashes)))

    if len(proof.peaks_hashes) != len(peak_positions):
        raise MalformedProofError('Expected %d peaks for %d elements; got %d' % \
                (len(peak_positions), proof.elements_count, len(proof.peaks_hashes)))

    digest = leaf_value
    for (sibling_position, is_right), sibling in zip(path, proof.siblings_hashes):
        if is_right:
            digest = hasher.hash_pair(sibling, digest)
        else:
            digest = hasher.hash_pair(digest, sibling)

    slot = peak_positions.index(peak)
    if proof.peaks_hashes[slot] != digest:
        logger.debug('Position %d does not climb to peak %d', proof.element_index, peak)
        return False

    peaks = list(proof.peaks_hashes)
    peaks[slot] = digest

    candidate_root = calc_root_hash(proof.elements_count, bag_peaks(peaks, hasher), hasher)
    if candidate_root != expected_root:
        logger.debug('Proof for position %d of %d does not match expected root',
                     proof.element_index, proof.elements_count)
        return False

    return True

def verify_proofs(leaf_values, proofs, expected_root, hasher=DEFAULT_HASHER):
    """Verify several proofs against the same root

    Returns True only if every proof verifies.
    """
    leaf_values = list(leaf_values)
    proofs = list(proofs)
    if len(leaf_values) != len(proofs):
        raise ValueError('Got %d leaf values but %d proofs' % (len(leaf_values), len(proofs)))

    return all(verify_proof(leaf_value, proof, expected_root, hasher)
               for leaf_value, proof in zip(leaf_values, proofs))
