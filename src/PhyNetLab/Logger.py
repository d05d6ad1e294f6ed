#! /usr/bin/env python
# -*- coding: utf-8 -*-

##############################################################################
##  -- PhyNetLab --
##  Library for Teaching Exploratory Phylogenetics and Network Science
##
##  Copyright 2025 Mark Kessler, Luay Nakhleh.
##  All rights reserved.
##
##  See "LICENSE.txt" for terms and conditions of usage.
##
##  If you use this work or any portion thereof in published work,
##  please cite it as:
##
##     Mark Kessler, Luay Nakhleh. 2025.
##
##############################################################################

"""
Module that collects the output of an analysis (progress messages, figures,
trees, networks and tables) and renders it as a single html report, for 
easily reviewing what a lesson or an optimization did.

Release Version: 1.0.0

Author: Mark Kessler
"""

from __future__ import annotations
import base64
from io import BytesIO
from pathlib import Path
import webbrowser
import lxml.html
from lxml.html import builder as E
import matplotlib.pyplot as plt
import networkx as nx
import pandas as pd
from Bio.Phylo.BaseTree import Tree
from . import vis


class Logger:
    """
    Class that logs method output in html formatting. Entries are kept in 
    the order they were logged, and written out all at once by to_html.
    """
    
    def __init__(self, id : str = "phynetlab", title : str = None) -> None:
        """
        Args:
            id (str, optional): name of the log, used for the default output 
                                file name. Defaults to "phynetlab".
            title (str, optional): report title. Defaults to the id.
        """
        self.id : str = id
        self.title : str = title if title is not None else id
        self.entries : list[tuple[str, str, str]] = []
    
    @property
    def lines(self) -> list[str]:
        """
        Returns:
            list[str]: every text entry logged so far
        """
        return [content for kind, content, _ in self.entries 
                if kind == "text"]
        
    def log(self, text : str) -> None:
        """
        Log a line of text.
        """
        self.entries.append(("text", str(text), None))
    
    def log_figure(self, fig : plt.Figure, comment : str = None, 
                   close : bool = True) -> None:
        """
        Log a matplotlib figure, stored as an embedded png.

        Args:
            fig (plt.Figure): the figure
            comment (str, optional): caption. Defaults to None.
            close (bool, optional): close the figure afterwards. 
                                    Defaults to True.
        """
        tmpfile = BytesIO()
        fig.tight_layout()
        fig.savefig(tmpfile, format = "png")
        encoded = base64.b64encode(tmpfile.getvalue()).decode("utf-8")
        self.entries.append(("figure", encoded, comment))
        if close:
            plt.close(fig)
    
    def log_tree(self, tree : Tree, comment : str = None) -> None:
        """
        Log a drawing of a phylogenetic tree.
        """
        fig, ax = plt.subplots()
        vis.draw_tree(tree, ax = ax)
        self.log_figure(fig, comment)
    
    def log_network(self, G : nx.Graph, comment : str = None, 
                    **kwargs) -> None:
        """
        Log a drawing of a graph. Keyword arguments go to vis.draw_graph.
        """
        fig, ax = plt.subplots()
        vis.draw_graph(G, ax = ax, **kwargs)
        self.log_figure(fig, comment)
    
    def log_table(self, table : pd.DataFrame, comment : str = None) -> None:
        """
        Log a pandas table.
        """
        self.entries.append(("table", table.to_html(float_format = "%.4f"), 
                             comment))
    
    def render(self) -> str:
        """
        Build the html document.

        Returns:
            str: the report
        """
        body = [E.H1(self.title)]
        for kind, content, comment in self.entries:
            if comment is not None:
                body.append(E.P(E.B(comment)))
            if kind == "text":
                body.append(E.PRE(content))
            elif kind == "figure":
                body.append(E.IMG(src = f"data:image/png;base64,{content}"))
            else:
                body.append(lxml.html.fromstring(content))
            body.append(E.HR())
        
        html = E.HTML(E.HEAD(E.TITLE(self.title)), E.BODY(*body))
        return lxml.html.tostring(html, pretty_print = True, 
                                  doctype = "<!DOCTYPE html>").decode("utf-8")
    
    def to_html(self, path : str | Path = None, 
                open_browser : bool = False) -> Path:
        """
        Write the report to disk.

        Args:
            path (str | Path, optional): output file. Defaults to 
                                         "<id>.html" in the working directory.
            open_browser (bool, optional): open the report in a web browser.
                                           Defaults to False.
        Returns:
            Path: where the report was written
        """
        path = Path(path) if path is not None else Path(f"{self.id}.html")
        path.write_text(self.render(), encoding = "utf-8")
        if open_browser:
            webbrowser.open(path.resolve().as_uri(), new = 1)
        return path
