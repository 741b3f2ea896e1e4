"""Plant, state and configuration primitives shared by the learner."""
