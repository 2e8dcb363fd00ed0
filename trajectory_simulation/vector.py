import numpy as np


def vec3(x=0.0, y=0.0, z=0.0):
    return np.array([x, y, z], dtype=float)


def frozen_vec3(v):
    """Copy ``v`` into a read-only float triple."""
    arr = np.array(v, dtype=float).reshape(3)
    arr.setflags(write=False)
    return arr


def length(v):
    return float(np.linalg.norm(v))


def normalized(v):
    l = length(v)
    if l == 0:
        return vec3()
    return v / l


def unit(v):
    """Like :func:`normalized` but refuses to normalise a zero vector."""
    l = length(v)
    if l == 0 or not np.isfinite(l):
        raise ZeroDivisionError("cannot normalise a zero-length vector")
    return v / l


def cross(a, b):
    return np.cross(a, b)


def dot(a, b):
    return float(np.dot(a, b))


def horizontal(v):
    """Project onto the ground plane (drop the y component)."""
    return vec3(v[0], 0.0, v[2])
