"""
Service layer abstraction.

Each service encapsulates the business logic of one domain and takes
the acting user as an explicit argument.  API handlers stay thin: they
parse the request, call a service and shape the response.
"""
