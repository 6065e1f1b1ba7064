"""
Usefull calculation functions.

The functions in this module are used by various other modules of the package. They can be called
by the prefix :code:`tkevd.functions.` or directly by :code:`tkevd.`.

"""

from typing import Union

import jax.numpy as jnp
from jax import lax, jit, vmap
from jaxtyping import Float, Array


@jit
def tridiag_solve(
        a: Float[Array, 'n'],
        b: Float[Array, 'n'],
        c: Float[Array, 'n'],
        f: Float[Array, 'n']
    ) -> Float[Array, 'n']:
    r"""
    Solve a trigiagonal problem.

    The tridiagonal problem can be written :math:`\mathbb MX = F` where
    :math:`\mathbb M = \begin{pmatrix} b_1 & c_1 & & \\
    a_2 & \ddots & \ddots & \\
    & \ddots & \ddots & c_{n-1} \\
    & & a_n & b_n
    \end{pmatrix}`
    and :math:`F = \begin{pmatrix} f_1 \\ \vdots \\ f_n \end{pmatrix}`.
    The problem is solved by recurrence using :mod:`jax.lax`.

    Parameters
    ----------
    a : Float[~jax.Array, 'n']
        Left diagonal of :math:`\mathbb M`, the first element is not used.
    b : Float[~jax.Array, 'n']
        Middle diagonal of :math:`\mathbb M`.
    c : Float[~jax.Array, 'n']
        Right diagonal of :math:`\mathbb M`, the last element is not used.
    f : Float[~jax.Array, 'n']
        Right hand of the equation :math:`F`.

    Returns
    -------
    x : Float[~jax.Array, 'n']
        Solution :math:`X` of tridiagonal problem.
    """
    n, = a.shape
    # forward sweep
    cff = 1.0 / b[0]
    f = f.at[0].multiply(cff)
    q = jnp.zeros(n, dtype=f.dtype)
    q = q.at[0].set(-c[0] * cff)

    def body_fun1(k: int, x: Float[Array, '2 n']):
        f = x[0, :]
        q = x[1, :]
        cff = 1.0 / (b[k] + a[k] * q[k-1])
        q = q.at[k].set(-cff * c[k])
        f = f.at[k].set(cff * (f[k] - a[k] * f[k-1]))
        return jnp.stack([f, q])
    f_q = jnp.stack([f, q])
    f_q = lax.fori_loop(1, n, body_fun1, f_q)
    f = f_q[0, :]
    q = f_q[1, :]

    # backward substitution
    def body_fun2(k: int, x: Float[Array, 'n']):
        return x.at[n-1-k].add(q[n-1-k] * x[n-k])
    x = lax.fori_loop(1, n, body_fun2, f)

    return x


def tridiag_solve_columns(
        a: Float[Array, '... n'],
        b: Float[Array, '... n'],
        c: Float[Array, '... n'],
        f: Float[Array, '... n']
    ) -> Float[Array, '... n']:
    """
    Solve independent tridiagonal problems along the last axis.

    Every leading index describes one column, the columns are flattened and solved with
    :func:`tridiag_solve` mapped by :func:`~jax.vmap`.

    Parameters
    ----------
    a, b, c, f : Float[~jax.Array, '... n']
        Diagonals and right hand of the problems, cf. :func:`tridiag_solve`.

    Returns
    -------
    x : Float[~jax.Array, '... n']
        Solutions of the problems, with the same shape as :code:`f`.
    """
    shape = f.shape
    n = shape[-1]
    a, b, c = (jnp.broadcast_to(d, shape).reshape(-1, n) for d in (a, b, c))
    x = vmap(tridiag_solve)(a, b, c, f.reshape(-1, n))
    return x.reshape(shape)


def add_boundaries(
        vec_btm: Union[float, Float[Array, '...']],
        vec_in: Float[Array, '... n-2'],
        vec_sfc: Union[float, Float[Array, '...']]
    ) -> Float[Array, '... n']:
    """
    Concatenate the three parts of a vector along the vertical : bottom, inside and surface.

    This functions is made to avoid loops and make JAX more efficient by writing the calculations
    with vectorization when possible. The boundary values may be scalars or arrays with the shape of
    :code:`vec_in` without its last axis (one value per column).

    Parameters
    ----------
    vec_btm : float or Float[~jax.Array, '...']
        Bottom value of the vector.
    vec_in : Float[~jax.Array, '... n-2']
        Middle values of the vector.
    vec_sfc : float or Float[~jax.Array, '...']
        Surface value of the vector.

    Returns
    -------
    vec : Float[~jax.Array, '... n']
        Concatenated vector.
    """
    columns = vec_in.shape[:-1]
    btm = jnp.broadcast_to(jnp.asarray(vec_btm, dtype=vec_in.dtype), columns)[..., None]
    sfc = jnp.broadcast_to(jnp.asarray(vec_sfc, dtype=vec_in.dtype), columns)[..., None]
    return jnp.concatenate([btm, vec_in, sfc], axis=-1)


def _format_to_single_line(text: str) -> str:
    """
    Transforms a multiple line text in a line string by removing indentations.

    In the code the error and warning messages are written on multiple lines with indentations to
    respect the maximum line length and the consistency of indentations. This function is used to
    show correctly these messages on one line and without the indentations.

    Parameters
    ----------
    text : str
        Text on multiple lines to transform.

    Returns
    -------
    line : str
        Text on a single line removed from indentations.
    """
    lines = text.splitlines()
    stripped_lines = [line.strip() for line in lines]
    single_line = " ".join(stripped_lines)
    return " ".join(single_line.split())
