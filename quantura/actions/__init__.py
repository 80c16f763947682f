"""
Action layer: authorization-checked entry points over the repositories.

Every action takes an ActionContext first and returns a Result; see
quantura.actions.factory for the wrapper that enforces permissions and the
tenant association of the acting principal.
"""
