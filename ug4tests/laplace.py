"""
Laplace regression case.

Solves -laplace(c) = 0 on the "Inner" volume subset of a 3D grid with
c = -1 on "bndNegative" and c = 1 on "bndPositive" (natural boundary
conditions elsewhere), using BiCGStab preconditioned by geometric multigrid
(damped Jacobi smoother, SuperLU on the base level).
"""
import logging
from typing import List, Optional
import numpy as np
from .io import read_ugx
from .assemble import ApproximationSpace, assemble_linear
from .boundary import DirichletBoundary
from .elements import ConvectionDiffusion
from .multigrid import GeometricMultigrid, prolongation_matrix
from .solver import SolverResult, bicgstab_solve
from .config import LaplaceConfig
from .testcase import Testcase

logger = logging.getLogger(__name__)


class Laplace(Testcase):

    def __init__(self, grid, reference, config: LaplaceConfig = LaplaceConfig()):
        super().__init__(grid, reference)
        self.config = config
        self.result: Optional[SolverResult] = None

    def run(self) -> np.ndarray:
        cfg = self.config
        logger.info(f"Laplace: grid {self.gridname}, {cfg.num_refinements} refinements")

        # Domain
        self.load_domain(read_ugx(self.gridname))
        self.refine(cfg.num_refinements)

        # Approximation Space
        self.approx_space = ApproximationSpace(self.domain)
        self.approx_space.add(cfg.function, "Lagrange", 1)

        # Element Discretization
        disc = ConvectionDiffusion(cfg.function, cfg.inner_subsets)
        disc.set_diffusion(cfg.diffusion)
        disc.set_reaction(cfg.reaction)
        self.elem_disc = disc

        # Dirichlet Boundary Conditions
        dirichlet = DirichletBoundary()
        for subset, value in cfg.boundary_values.items():
            dirichlet.add(value, cfg.function, subset)
        self.dirichlet = dirichlet

        # Level operators for the multigrid hierarchy
        matrices = []
        constrained: List[np.ndarray] = []
        for lev, grid in enumerate(self.domain.levels):
            A, b = assemble_linear(self.approx_space, disc, dirichlet, level=lev)
            matrices.append(A)
            constrained.append(dirichlet.constrained_dofs(grid)[0])
        prolongations = [
            prolongation_matrix(self.domain.levels[lev].num_vertices, parents)
            for lev, parents in enumerate(self.domain.parent_edges)
        ]
        gmg = GeometricMultigrid(matrices, prolongations, constrained, cfg.gmg)

        # Solve on the surface level
        u = np.zeros(self.approx_space.num_dofs(), dtype=float)
        dirichlet.adjust_solution(u, self.domain.top)
        self.result = bicgstab_solve(matrices[-1], b, u, gmg, cfg.conv_check)

        self.solution = self.result.solution
        return self.solution
