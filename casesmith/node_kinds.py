"""Tree-sitter node kinds recognised by the extractor, CFG builder and classifier."""

# Declarations
FUNCTION_DECLARATION = "function_declaration"
CLASS_DECLARATION = "class_declaration"
CLASS_EXPRESSION = "class"
EXPORT_STATEMENT = "export_statement"
LEXICAL_DECLARATION = "lexical_declaration"
VARIABLE_DECLARATION = "variable_declaration"
VARIABLE_DECLARATOR = "variable_declarator"
ASSIGNMENT_EXPRESSION = "assignment_expression"

# Function-valued expressions
ARROW_FUNCTION = "arrow_function"
FUNCTION_EXPRESSION = "function_expression"
FUNCTION_LEGACY = "function"

# Class members
METHOD_DEFINITION = "method_definition"
CONSTRUCTOR = "constructor"
PUBLIC_FIELD_DEFINITION = "public_field_definition"
FIELD_DEFINITION = "field_definition"
PRIVATE_FIELD_DEFINITION = "private_field_definition"
DECORATOR = "decorator"

# Statements
IF_STATEMENT = "if_statement"
FOR_STATEMENT = "for_statement"
WHILE_STATEMENT = "while_statement"
RETURN_STATEMENT = "return_statement"

# Expressions
CALL_EXPRESSION = "call_expression"
MEMBER_EXPRESSION = "member_expression"
IDENTIFIER = "identifier"

CLASS_KINDS = frozenset({CLASS_DECLARATION, CLASS_EXPRESSION})
VAR_DECLARATION_KINDS = frozenset({LEXICAL_DECLARATION, VARIABLE_DECLARATION})
FUNCTION_VALUE_KINDS = frozenset({ARROW_FUNCTION, FUNCTION_EXPRESSION, FUNCTION_LEGACY})
EXPORTED_FUNCTION_KINDS = frozenset({ARROW_FUNCTION, FUNCTION_EXPRESSION})
METHOD_KINDS = frozenset({METHOD_DEFINITION, CONSTRUCTOR})
FIELD_DEFINITION_KINDS = frozenset(
    {PUBLIC_FIELD_DEFINITION, FIELD_DEFINITION, PRIVATE_FIELD_DEFINITION}
)
LOOP_KINDS = frozenset({FOR_STATEMENT, WHILE_STATEMENT})
SECRET_CANDIDATE_KINDS = frozenset({MEMBER_EXPRESSION, CALL_EXPRESSION, IDENTIFIER})

# Field names used with child_by_field_name
FIELD_NAME = "name"
FIELD_BODY = "body"
FIELD_VALUE = "value"
FIELD_LEFT = "left"
FIELD_RIGHT = "right"
FIELD_OBJECT = "object"
FIELD_PROPERTY = "property"
FIELD_KEY = "key"
FIELD_FUNCTION = "function"
