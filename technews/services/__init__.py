# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and database access:
#
#   user_service  — list / detail / create / update / delete for User
#   auth_service  — credential checks and session open / close
#
# All service functions accept an AsyncSession as their first argument
# so that the router layer controls the transaction boundary via the
# ``get_db`` dependency.
